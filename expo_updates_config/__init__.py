"""expo-updates-config - configure expo-updates in native Expo projects."""

__version__ = "0.1.0"
