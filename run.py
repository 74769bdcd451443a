#!/usr/bin/env python3
"""
Simple script to run the chat relay server
"""

from chat_relay.main import run, settings

if __name__ == "__main__":
    print("Starting Chat Relay...")
    print(f"Server will be available at: http://{settings.host}:{settings.port}")
    print(f"Upstream: {settings.upstream_url} ({settings.upstream_model})")
    print(f"Allowed origins: {', '.join(settings.allowed_origins)}")
    print("-" * 50)
    
    run()
