import io
import setuptools

VERSION='0.1.0'

setuptools.setup(name='pyvcdkit',
                 version=VERSION,
                 description='Pure python UDF image reader and parallel collect-and-run scheduler',
                 long_description=io.open('README.md', encoding='UTF-8').read(),
                 long_description_content_type='text/markdown',
                 author='Chris Lalancette',
                 author_email='clalancette@gmail.com',
                 license='LGPLv2',
                 classifiers=['Development Status :: 3 - Alpha',
                              'Intended Audience :: Developers',
                              'License :: OSI Approved :: GNU Lesser General Public License v2 (LGPLv2)',
                              'Natural Language :: English',
                              'Programming Language :: Python :: 3',
                 ],
                 keywords='udf ecma167 iso13346 iso scheduler',
                 packages=['pyvcdkit'],
                 python_requires='>=3.7',
                 extras_require={'test': ['pytest']},
                 scripts=['tools/pyvcdkit-extract-files'],
)
