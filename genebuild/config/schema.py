#!/usr/bin/env python3
"""
Expected shape of the genebuild configuration.
"""
from typing import Dict, Any, List, Optional

NUMBER = (int, float)


class ConfigSchema:
    """Sections and fields as (type, required) pairs"""

    SCHEMA = {
        'database': {
            'host': (str, True),
            'port': (int, True),
            'database': (str, True),
            'user': (str, True),
            'password': (str, False),
        },
        'est_database': {
            'host': (str, False),
            'port': (int, False),
            'database': (str, False),
            'user': (str, False),
            'password': (str, False),
        },
        'paths': {
            'output_dir': (str, True),
            'genomic_dir': (str, False),
        },
        'pseudogene': {
            'min_coverage': (NUMBER, True),
            'min_percent_id': (NUMBER, True),
            'best_in_genome': (bool, True),
            'max_frameshift_intron': (int, False),
            'remove_overlaps': (bool, False),
            'logic_name': (str, False),
        },
        'est_discrimination': {
            'est_coverage_cutoff': (NUMBER, True),
            'distance_twilight': (NUMBER, True),
            'distance_mode': (str, False),
            'alignment_padding': (int, False),
            'remove_introns': (bool, False),
        },
        'sequence_fetcher': {
            'type': (str, False),
            'index_file': (str, False),
            'ena_url': (str, False),
            'timeout': (NUMBER, False),
        },
        'logging': {
            'level': (str, False),
            'format': (str, False),
            'log_dir': (str, False),
        },
    }

    DISTANCE_MODES = ('informative_sites', 'nucleotide')

    @staticmethod
    def _type_name(expected) -> str:
        if isinstance(expected, type):
            return expected.__name__
        return '/'.join(t.__name__ for t in expected)

    @classmethod
    def _check_value(cls, name: str, value: Any, expected) -> Optional[str]:
        # True/False would otherwise pass as numbers
        if isinstance(value, bool) and expected is not bool:
            ok = False
        else:
            ok = isinstance(value, expected)
        if ok:
            return None
        return (f"Invalid type for {name}: expected {cls._type_name(expected)}, "
                f"got {type(value).__name__}")

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Check a configuration; returns the problems found, empty when valid"""
        errors = []

        for section, fields in cls.SCHEMA.items():
            values = config.get(section)
            if values is None:
                if any(required for _, required in fields.values()):
                    errors.append(f"Missing required configuration section: {section}")
                continue

            for field, (expected, required) in fields.items():
                name = f"{section}.{field}"
                if field not in values:
                    if required:
                        errors.append(f"Missing required configuration field: {name}")
                    continue
                problem = cls._check_value(name, values[field], expected)
                if problem:
                    errors.append(problem)

        mode = (config.get('est_discrimination') or {}).get('distance_mode')
        if mode is not None and mode not in cls.DISTANCE_MODES:
            errors.append(f"Invalid est_discrimination.distance_mode: {mode} "
                          f"(choose from {', '.join(cls.DISTANCE_MODES)})")

        return errors
