"""Package-manager implementations — auto-discovered by the package-manager registry."""
