"""Tkinter views (tksheet grid panel and row styling) over the grid store."""
