"""Physical parameter tables and region variants."""
