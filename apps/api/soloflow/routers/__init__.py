"""Page and API routers."""
