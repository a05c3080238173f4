"""HTTP surface of the Scribe agent."""
