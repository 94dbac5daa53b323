"""DT Protection booking, billing and client portal service"""
