"""Concurrent network probing"""
