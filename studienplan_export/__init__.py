"""
Convert HTML exports of spreadsheet timetables (Studienpläne) into
iCalendar files and JSON dumps.
"""
__version__ = "0.1.0"
