"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Conversation history sidebar and new chat action
    - Transcript display with live streaming updates
    - Image attachment staging, reactions and copy actions
    - Model selection

Contains no business logic. Renders ChatSession and forwards user
intents to it.
"""
