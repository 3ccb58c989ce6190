"""Small helpers shared across agentdir subpackages."""
