"""Wrappers for rfkill, btmgmt, hciconfig and hcitool, and a command runner."""