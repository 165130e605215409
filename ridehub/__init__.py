"""RideHub attendance consensus and reputation backend."""
