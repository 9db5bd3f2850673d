from .genome_repository import GenomeRepository

__all__ = ['GenomeRepository']
