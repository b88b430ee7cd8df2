"""TrendStudio brand kit and palette extraction service."""
