"""Philippine bi-monthly payroll computation and compliance aggregation engine."""

__version__ = "0.1.0"
