"""
mongotest integration tests

These tests run the scenarios against real containers of the image passed
with --image. The replica set test takes a few minutes: members are started
one by one and the second member is kept down on purpose.

Ports: 27117 and 27217 inside the containers, nothing is published on the host.
"""
