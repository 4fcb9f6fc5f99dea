"""Core configuration, platform profiles and session orchestration."""
