"""HTTP routers for ZFS API"""
