"""JSON and CSV export of cost reports."""
