#!/usr/bin/env python3
"""
Genebuild Pipeline Configuration Module
"""
from .manager import ConfigManager
from .schema import ConfigSchema
from .defaults import DEFAULT_CONFIG, FLAT_OPTIONS

__all__ = ['ConfigManager', 'ConfigSchema', 'DEFAULT_CONFIG', 'FLAT_OPTIONS']
