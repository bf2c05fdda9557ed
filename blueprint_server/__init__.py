"""Host server for the blueprint editor: session, REST/WebSocket API and CLI."""
