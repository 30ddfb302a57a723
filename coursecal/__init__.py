"""
coursecal - search a course catalog, collect sections into calendars and
lay them out on a weekly grid.
"""
