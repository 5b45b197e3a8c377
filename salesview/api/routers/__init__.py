"""HTTP routers for SalesView."""
