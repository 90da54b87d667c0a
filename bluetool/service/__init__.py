"""GATT application, service, characteristic, descriptor and advertisement objects."""