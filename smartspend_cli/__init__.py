"""Console client for SmartSpend."""
