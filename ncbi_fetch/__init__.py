"""
NCBI Fetch

Download sequence records, plastid genomes and genome assemblies from
NCBI EUtils and the genomes FTP tree.
"""

__version__ = "0.2.0"
