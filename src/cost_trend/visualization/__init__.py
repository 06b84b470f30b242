"""Console tables and charts for cost reports."""
