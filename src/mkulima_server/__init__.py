"""mkulima_server — FastAPI REST API for the Mkulima Hub survey.

Serves the question catalog, accepts submissions (pre-assembled or as raw
answers assembled server-side), and exposes admin endpoints for catalog
management, submission review and analytics behind bearer-token auth.
"""
