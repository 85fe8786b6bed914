"""SoloFlow web application."""
