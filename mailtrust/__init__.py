"""Trust scoring for email addresses: disposable-domain detection plus crowd-sourced reputation."""

__version__ = "0.1.0"
