"""Core logic: path templates, pagination, metrics correlation and views."""
