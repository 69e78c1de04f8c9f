"""
Live Data Service

Process-wide market and news aggregation for the learning platform.
Polls the upstream price source and the news synthesizer on independent
schedules, keeps the results in in-memory caches and fans out change
notifications to in-process subscribers.

Architecture:
    CoinGecko (external) -> coingecko client -> normalizer -> market cache -+
    news synthesizer ---------------------------------------> news cache ---+-> bus -> [ws_server, relay]

Components:
    - coingecko: aiohttp client and payload normalizer for simple/price
    - news: template-based market-commentary synthesizer
    - bus: typed in-memory publish/subscribe
    - service: LiveDataService owning both caches and both schedules
    - ws_server: WebSocket server serving cached data to clients
    - relay: optional Redis relay of bus topics
"""
