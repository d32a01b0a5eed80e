"""Study time scheduler: places pending tasks into the free time left by a course timetable."""

__version__ = "0.1.0"
