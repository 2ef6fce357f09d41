"""Rich rendering of reports and listings."""
