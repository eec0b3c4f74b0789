"""Process runtime for the livepulse agent."""
