"""
Clinic Scheduling Backend

A FastAPI-based backend for a clinic: administrators, doctors and patients,
stateless token authentication with per-role authorization, and appointment
scheduling with doctor availability.
"""

__version__ = "1.0.0"
