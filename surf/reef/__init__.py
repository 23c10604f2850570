"""Colour and output settings for a key=value terminal log handler."""