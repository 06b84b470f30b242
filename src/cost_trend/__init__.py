"""
Cost Trend

Multi-account AWS cost trend analysis: month-over-month trends, per-service
consumption shares and a unified cross-account view, rendered as tables,
JSON, CSV and charts.
"""

__version__ = "1.0.0"
__author__ = "Cost Trend Team"
