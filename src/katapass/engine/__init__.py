"""Engine-side plumbing: framing, relaying and intercepting GTP traffic.

Modules are imported directly, e.g. ``from katapass.engine.broker import
InterceptionBroker``, so that importing the package stays side-effect free.
"""
