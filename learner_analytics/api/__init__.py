"""HTTP API for the learner analytics engine."""
