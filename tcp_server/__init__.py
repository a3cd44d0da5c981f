"""
GT06 GPS tracker TCP server
"""
