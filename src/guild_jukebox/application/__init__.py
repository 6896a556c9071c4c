"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: CQRS write operations (PlayTrackCommand, VoteSkipCommand)
- queries/: CQRS read operations (GetQueueQuery)
- services/: Per-guild playback sessions and their registry
- interfaces/: Port interfaces for infrastructure adapters
"""
