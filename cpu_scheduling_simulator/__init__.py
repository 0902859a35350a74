"""
CPU scheduling simulator.
Simulates FCFS, SJF, SRTF, Round Robin and MLFQ scheduling over a logical clock.
"""

__version__ = "0.1.0"
