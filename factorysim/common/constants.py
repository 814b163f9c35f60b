"""
Constants shared across the simulator.
"""

# Seed events placed on the event queue at t=0
INITIAL_ARRIVAL_TIME = 0.0
DEFAULT_INITIAL_BREAKDOWN_TIME = 150.0

DEFAULT_TIME_UNITS = "minutes"

SERVICE_DETERMINISTIC = "deterministic"
SERVICE_EXPONENTIAL = "exponential"
SERVICE_DISTRIBUTIONS = (SERVICE_DETERMINISTIC, SERVICE_EXPONENTIAL)
