"""
Analysis pipelines: processed pseudogene detection and EST discrimination
"""
