"""ADXL345 register model and driver, sample ring buffer, host packet protocol and sampling state machine."""

__version__ = "0.1.10"