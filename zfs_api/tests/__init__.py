"""Tests for ZFS API"""
