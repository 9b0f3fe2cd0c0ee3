"""HTTP service exposing the metrics SDK"""
