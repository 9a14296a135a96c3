"""Payment-gated booking API"""
