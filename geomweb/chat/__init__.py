"""Chat assistant: stream client, conversation state and gateway."""
