import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))
    ADMIN_DISCORD_IDS = os.getenv('ADMIN_DISCORD_IDS', '')  # Comma-separated, granted the admin role

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///tracker.db')

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Vision (document recognition) service
    VISION_ENDPOINT = os.getenv('VISION_ENDPOINT', '')
    VISION_API_KEY = os.getenv('VISION_API_KEY', '')
    VISION_API_VERSION = os.getenv('VISION_API_VERSION', '2024-11-30')
    VISION_POLL_INTERVAL = float(os.getenv('VISION_POLL_INTERVAL', 1.0))
    VISION_TIMEOUT_SECONDS = float(os.getenv('VISION_TIMEOUT_SECONDS', 60.0))
    VISION_REQUEST_TIMEOUT = 10.0

    # Custom extraction model per game id
    VISION_MODEL_IDS = {
        1: os.getenv('VISION_MODEL_MK8', 'rdc-mario-kart-8'),
        2: os.getenv('VISION_MODEL_RL', 'rdc-rocket-league'),
        3: os.getenv('VISION_MODEL_COD', 'rdc-cod-gun-game'),
        4: os.getenv('VISION_MODEL_MR', 'rdc-marvel-rivals'),
    }

    # Session listing cache (rediss:// with credentials required outside DEBUG)
    REDIS_URL = os.getenv('REDIS_URL', '')
    SESSION_CACHE_TTL = int(os.getenv('SESSION_CACHE_TTL', 300))
    SESSION_CACHE_PREFIX = 'sessions:'
    RECENT_SESSIONS_LIMIT = 10

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            # Multi-guild support: comma-separated IDs
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            # Single guild support
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def get_admin_ids(cls):
        """Get the set of Discord user IDs holding the admin role"""
        admin_ids = set()
        if cls.ADMIN_DISCORD_IDS:
            try:
                admin_ids = {int(user_id.strip()) for user_id in cls.ADMIN_DISCORD_IDS.split(',') if user_id.strip()}
            except ValueError:
                raise ValueError("ADMIN_DISCORD_IDS must be comma-separated integers")
        if cls.OWNER_DISCORD_ID:
            admin_ids.add(cls.OWNER_DISCORD_ID)
        return admin_ids

    @classmethod
    def get_vision_model_id(cls, game_id: int) -> str:
        """Get the extraction model trained for a game's result screen"""
        try:
            return cls.VISION_MODEL_IDS[game_id]
        except KeyError:
            raise ValueError(f"No vision model configured for game id {game_id}")

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.DISCORD_GUILD_ID and not cls.DISCORD_GUILD_IDS:
            raise ValueError("Either DISCORD_GUILD_ID or DISCORD_GUILD_IDS is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")
        if not cls.VISION_ENDPOINT or not cls.VISION_API_KEY:
            raise ValueError("VISION_ENDPOINT and VISION_API_KEY are required")
