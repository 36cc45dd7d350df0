"""Realtime infrastructure (Socket.IO, RPC dispatch, live sessions).

Chat, notifications and future features share one socket server; clients
call methods and receive pushed events over the single ``rpc`` event.
"""
