"""Snapshot sources"""
