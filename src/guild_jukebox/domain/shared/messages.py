"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_STREAM_URL = "Stream URL cannot be empty"
    QUEUE_FULL = "Queue is full (max {max_size} tracks)"

    # Session Errors
    SESSION_DESTROYED = "Session for guild {guild_id} has been destroyed"

    # Voice Errors
    GUILD_NOT_FOUND = "Guild {guild_id} is not available"
    CHANNEL_NOT_VOICE = "Channel {channel_id} is not a voice channel"
    VOICE_CONNECT_TIMEOUT = "Timed out joining voice channel {channel_id}"
    VOICE_NO_PERMISSION = "Missing permission to join voice channel {channel_id}"
    VOICE_CLIENT_ERROR = "Voice client error: {error}"
    PLAYBACK_REFUSED = "Voice client refused to play: {error}"

    # Audio/Stream Errors
    NO_STREAM_URL_FOR_TRACK = "No stream URL found for {url}"
    EXTRACTION_FAILED = "Media service could not extract {url}"
    RESOLVER_UNREACHABLE = "Media service is unreachable: {error}"

    # Settings
    INVALID_SNOWFLAKE = "Discord snowflake must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake exceeds 64 bits"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Authentication/Bootstrap
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_JOIN_FAILED = "Failed to join voice in guild %s: %s"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect voice in guild %s"
    VOICE_LOST = "Bot was disconnected from voice in guild %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    PLAYBACK_FAILED_START = "Failed to start '%s' in guild %s: %s"
    PLAYBACK_STOP_FAILED = "Failed to stop player in guild %s"
    PLAYBACK_STALE_EVENT = "Ignoring stale playback event (generation %s, current %s) in guild %s"
    TRACK_ENDED = "Track ended in guild %s (error: %s)"
    TRACK_DISCARDED = "Discarded unplayable track '%s' in guild %s: %s"
    TRACK_REPLAYING = "Replaying '%s' in guild %s (loop single)"
    TRACK_SKIPPED = "Skipped '%s' in guild %s (%s)"
    TRACK_ANNOUNCE_FAILED = "Now-playing announcement failed in guild %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s in guild %s"
    QUEUE_EXHAUSTED = "Queue exhausted in guild %s"
    QUEUE_REFILLED = "Refilled queue from loop snapshot (%s tracks) in guild %s"
    QUEUE_REFILL_ABANDONED = (
        "No track in the loop snapshot could be played in guild %s; giving up until next enqueue"
    )

    # Loop Mode
    LOOP_MODE_CHANGED = "Loop mode changed to %s in guild %s"

    # Vote Skip
    VOTE_RECORDED = "Skip vote by %s in guild %s: %s/%s"
    VOTES_RECONCILED = "Dropped %s stale skip votes in guild %s"

    # Session Lifecycle
    SESSION_CREATED = "Created playback session for guild %s"
    SESSION_DESTROYED = "Destroyed playback session for guild %s (%s)"
    SESSION_REMOVED = "Removed session for guild %s from registry"
    SESSION_EVENT_FAILED = "Unhandled error processing %s in guild %s"
    SESSIONS_SHUTDOWN = "Shut down %s playback sessions"
    IDLE_TIMER_ARMED = "Idle timer armed for guild %s (%sms)"
    IDLE_TIMER_CANCELLED = "Idle timer cancelled for guild %s"
    IDLE_TIMER_FIRED = "Idle timeout reached in guild %s"
    IDLE_TIMER_STALE = "Ignoring stale idle timer for guild %s"

    # Cache Operations
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # Resolution/Search
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in info dict for %r"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    YTDLP_RESOLVED = "Resolved %r to '%s'"

    # Commands
    COMMAND_REPLY_FAILED = "Failed to reply to /%s in guild %s"
    PLAY_COMMAND_FAILED = "Error in play command"

    # Application Lifecycle
    BOT_STARTING = "Starting guild jukebox in {environment} mode"
    BOT_PLAYBACK_LIMITS = "Idle timeout %sms, queue limit %s tracks, voice connect timeout %ss"
    LOGGING_CONFIG_FALLBACK = "Could not load %s (%s), falling back to basic config"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %ss"
    BOT_SESSIONS_CLOSED = "Closed %s playback sessions before disconnecting"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_GUILD_REMOVED = "Removed from guild %s, destroying its playback session"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COGS_LOADED_SUMMARY = "Loaded %s cogs (%s failed)"
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Failed to sync commands on startup: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Play
    PLAY_NOW_PLAYING = "🎶 Now playing **{track_title}**"
    PLAY_QUEUED = "✅ Added to queue: **{track_title}** (position {position})"
    PLAY_UNPLAYABLE = "⚠️ Couldn't stream **{track_title}**, it was skipped."
    ANNOUNCE_NOW_PLAYING = "🎶 Now playing **{track_title}** (requested by {requester})"

    # Skip
    SKIP_REQUESTER = "⏭️ Skipped by the requester: **{track_title}**"
    SKIP_VOTE_PASSED = "⏭️ Skipped by vote ({votes_current}/{votes_needed}): **{track_title}**"
    SKIP_VOTE_RECORDED = "🗳️ Vote skip: {votes_current}/{votes_needed} (needed)"
    SKIP_ALREADY_VOTED = "🗳️ You already voted. Votes: {votes_current}/{votes_needed}"

    # Playback Controls
    ACTION_PAUSED = "⏸️ Paused."
    ACTION_RESUMED = "▶️ Resumed."
    ACTION_LOOP_MODE_SET = "🔁 Loop mode set to **{mode}**"
    ACTION_LOOP_MODE_UNCHANGED = "🔁 Loop mode is already **{mode}**"
    ACTION_DISCONNECTED = "👋 Disconnected from voice channel."

    # Queue
    QUEUE_HEADER = "📜 Current queue:"
    QUEUE_NOW_LINE = "▶️ {track_title}{duration} · {requester}"
    QUEUE_PAUSED_LINE = "⏸️ {track_title}{duration} · {requester}"
    QUEUE_LINE = "{index}. {track_title}{duration} · {requester}"
    QUEUE_MORE = "…and {count} more"
    QUEUE_LOOP_FOOTER = "🔁 Loop: **{mode}**"
    QUEUE_TOTAL_DURATION = "⏱️ Total duration: {duration}"

    # Errors
    ERROR_TRACK_NOT_FOUND = "❌ Couldn't find a track for: {query}"
    ERROR_RESOLUTION_FAILED = "❌ The media service couldn't handle that request. Try again later."
    ERROR_COULD_NOT_JOIN_VOICE = "❌ I couldn't join your voice channel."
    ERROR_QUEUE_FULL = "❌ The queue is full."
    ERROR_OCCURRED = "❌ An error occurred: {error}"

    # State Messages
    STATE_NOTHING_PLAYING = "❌ Nothing is playing."
    STATE_NOTHING_PLAYING_OR_PAUSED = "Nothing is playing or it is already paused."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_QUEUE_EMPTY = "📭 The queue is empty."
    STATE_NOT_CONNECTED_TO_VOICE = "I'm not connected to a voice channel."
    STATE_MUST_BE_IN_VOICE = "🔇 You need to join a voice channel first!"
    STATE_NOT_IN_BOT_CHANNEL = "🔇 Join my voice channel to vote."
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_VERIFY_VOICE_FAILED = "Could not verify your voice state."

    HELP = (
        "📖 **Commands**\n"
        "• `/play <title or url>` - Play a song\n"
        "• `/skip` - Skip the current song\n"
        "• `/pause` - Pause playback\n"
        "• `/resume` - Resume playback\n"
        "• `/loop <off|single|all>` - Set the loop mode\n"
        "• `/queue` - Show the queue\n"
        "• `/leave` - Disconnect from voice\n"
        "• `/help` - Show this help\n"
        "\n⏳ Only the requester can skip a song directly; everyone else has to vote."
    )
