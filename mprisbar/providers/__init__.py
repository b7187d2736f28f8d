"""
Providers: where media sessions come from.

A provider discovers players, reads their initial state, and forwards
appear/vanish and property-change events to the SessionRegistry.  It does not
render anything; the DisplayEngine only ever sees MediaSession objects.

Current providers:
  mpris.py  MPRIS players on the D-Bus session bus (dbus-next)
"""
