"""
Chain split monitor for Ethereum execution clients.

Polls several independently operated nodes, finds the first height at which
any two of them disagree, and publishes a report of the heights around every
split together with the headers each node holds there.
"""
