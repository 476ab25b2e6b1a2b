from datetime import time


def validate_time_range(start_time: time, end_time: time):
    if start_time >= end_time:
        raise ValueError("Slot end time must be after its start time (e.g., 13:00:00 to 14:00:00)")
    return start_time, end_time
