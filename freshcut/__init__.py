"""freshcut - perishable stock tracking with live, self-reclassifying inventory."""

__version__ = "0.1.0"
