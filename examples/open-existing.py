# This is a simple example program to show how to use pyvcdkit to open up an
# existing UDF image passed on the command-line, and print out the names of
# all of the entries in the root directory of the image.

# Import standard python modules.
import sys

# Import pyvcdkit itself.
import pyvcdkit

# Check that there are enough command-line arguments.
if len(sys.argv) != 2:
    print('Usage: %s <image>' % (sys.argv[0]))
    sys.exit(1)

# Create a new ImageReader object.
reader = pyvcdkit.ImageReader()

# Open up the image.  This causes pyvcdkit to parse all of the volume
# structures of the image, which are used for later navigation.
reader.open(sys.argv[1])

# Now iterate through each of the entries in the root directory of the image,
# printing out their names, sizes and POSIX permissions.
for child in reader.read_dir(reader.root_dir()):
    print('%s %d %o' % (child.name(), child.size(), child.mode().to_posix()))

# Close the reader.  After this call, the ImageReader object has forgotten
# everything about the previous image, and can be re-used.
reader.close()
