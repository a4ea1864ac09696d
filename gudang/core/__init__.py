"""Gudang core: configuration, database, logging and exceptions"""
