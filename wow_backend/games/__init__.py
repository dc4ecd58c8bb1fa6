"""
Casual games built on TMDb data: Seven Degrees and Play Your Movies Right.
"""
