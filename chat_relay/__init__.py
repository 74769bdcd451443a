"""
Chat Relay - forwards a chat message, with a fixed system prompt,
to a chat-completion API and returns the model's reply.
"""
__version__ = "1.0.0"
