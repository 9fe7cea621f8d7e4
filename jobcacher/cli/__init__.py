"""Jobcacher command line interface."""
