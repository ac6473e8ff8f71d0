"""HTTP routers: resource collaborators and diagnostics."""
