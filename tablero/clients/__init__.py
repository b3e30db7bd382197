"""
Outbound clients: the shared HTTP client and the hosted store client.
"""
