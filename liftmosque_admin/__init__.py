"""LiftMosque admin console core."""
