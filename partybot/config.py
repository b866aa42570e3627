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

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    # Database settings
    DATABASE_TYPE = os.getenv('DATABASE_TYPE', 'sqlite').lower()
    DATABASE_URL = os.getenv('DATABASE_URL', '')  # Explicit URL wins over the fields below
    SQLITE_PATH = os.getenv('SQLITE_PATH', 'party.db')
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', 5432))
    DB_NAME = os.getenv('DB_NAME', 'party')
    DB_USER = os.getenv('DB_USER', 'postgres')
    DB_PASSWORD = os.getenv('DB_PASSWORD', '')
    STORAGE_TIMEOUT = float(os.getenv('STORAGE_TIMEOUT', 5.0))  # Seconds per storage call

    # Party settings
    PARTY_SIZE_LIMIT = int(os.getenv('PARTY_SIZE_LIMIT', 0))  # 0 = unlimited
    PARTY_LOOKUP_ROLE = os.getenv('PARTY_LOOKUP_ROLE', 'Party Lookup')
    LEAVE_ON_OFFLINE = os.getenv('LEAVE_ON_OFFLINE', 'False').lower() == 'true'

    EMBEDDED_DATABASE_TYPES = ('sqlite', 'embedded-file')
    NETWORKED_DATABASE_TYPES = ('postgresql', 'postgres', 'networked-relational')

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def is_embedded_database(cls) -> bool:
        """True when the configured backend is the embedded SQLite file"""
        return cls.DATABASE_TYPE in cls.EMBEDDED_DATABASE_TYPES

    @classmethod
    def validate_database(cls):
        """Validate the storage related settings"""
        if cls.DATABASE_TYPE not in cls.EMBEDDED_DATABASE_TYPES + cls.NETWORKED_DATABASE_TYPES:
            raise ValueError(f"Unsupported DATABASE_TYPE: {cls.DATABASE_TYPE}")
        if cls.PARTY_SIZE_LIMIT < 0:
            raise ValueError("PARTY_SIZE_LIMIT must be 0 (unlimited) or a positive integer")
        if cls.STORAGE_TIMEOUT <= 0:
            raise ValueError("STORAGE_TIMEOUT must be positive")

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.DISCORD_GUILD_ID and not cls.DISCORD_GUILD_IDS:
            raise ValueError("Either DISCORD_GUILD_ID or DISCORD_GUILD_IDS is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")
        cls.validate_database()
