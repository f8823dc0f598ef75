"""Streaming over WebSocket: protocol messages, transport, events, dispatch and sessions."""