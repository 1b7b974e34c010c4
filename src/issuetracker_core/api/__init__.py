"""HTTP transport for the issue tracker."""
