"""Built-in CLI sub-commands for sweepcache.

* :mod:`~sweepcache.commands.get` -- fetch a resource through the cache.
* :mod:`~sweepcache.commands.cache` -- enable, disable, inspect, and sweep
  the response cache.
* :mod:`~sweepcache.commands.config` -- view and modify global settings.
"""
