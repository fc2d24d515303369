"""Ban check services.

Services hold the plugin's decision logic and call into stores and the Steam
client. Dependencies are passed in explicitly so tests can swap them for fakes.
"""
