"""
Motion-event inference algorithms.

- window: fixed-capacity sample history
- kinematics: velocity, direction change, joint angle, speed change
- stats: rolling rate and consistency metrics
- events: hit and rep state machines
"""
