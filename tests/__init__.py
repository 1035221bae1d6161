"""Sales report test suite"""
